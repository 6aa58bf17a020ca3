"""
RBAC (Role-Based Access Control) application.

Provides the access control graph with:
- Users, roles, groups and permissions with case-insensitive names
- Idempotent relationship reconciliation over the four edge tables
- Cascade deletion and live effective-permission resolution
- JWT authentication with authorities resolved per request
"""
