# backend/modules/merchants/__init__.py
