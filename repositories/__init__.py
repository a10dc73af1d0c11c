"""
repositories/ - Data Access Layer
==================================
Each repository encapsulates all SQL queries for a specific domain entity.
Repositories receive a `db.connection.Database` handle, read raw rows and
return domain model objects.
"""
