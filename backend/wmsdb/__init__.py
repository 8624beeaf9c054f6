# backend/wmsdb/__init__.py
"""
Warehouse management backend (`wmsdb.main`, `wmsdb.apps`) and the barcode
intake client (`wmsdb.intake`).

Importing the package itself does not touch the database configuration, so
the intake client can run without DATABASE_URL.
"""
