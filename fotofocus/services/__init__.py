"""
High-level use cases for the FotoFocus API.

Each service module orchestrates repositories/adapters to implement business
rules (register, reset password, rate a photo, delete an account, ...).
Routers call these services instead of touching the database directly.
"""
