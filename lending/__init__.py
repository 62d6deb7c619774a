"""Library Lending - Core Package

This package contains the lending domain and its adapters:
- Catalog entities (author.py, book.py)
- Members and the loan aggregate (member.py, loan.py, loan_date.py)
- Error hierarchy (errors.py)
- sqlite persistence (database.py, repositories.py)
- Lending use cases (library.py)
"""
