"""
crudgate

Permission-checked, cached and audited CRUD access layer for document stores.
"""
