"""
auth — User authentication module.

Provides:
  • JWT token creation & verification (PyJWT, HS256)
  • Password hashing (bcrypt)
  • Local (username/password) and bearer (cookie token) strategies
  • Register / Login / Logout / Authenticated API routes
  • ``get_current_user`` and ``require_role`` FastAPI dependencies
"""
