"""
auth — account authentication module.

Provides:
  • bcrypt password hashing
  • Access / refresh token issuance & verification (PyJWT)
  • ``AccountService`` for register / login / refresh / logout / profile updates
  • ``get_current_account`` FastAPI dependency
  • Account API routes
"""
