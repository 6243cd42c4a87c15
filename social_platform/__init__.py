"""Social posting platform - Backend.

Users sign up, log in with a cookie-held JWT, publish text/image posts and
comment on them.

Core concepts:
- Sessions are stateless signed tokens; the server never stores them.
- Every mutation is gated on ownership (post author, comment author, profile owner).

See DESIGN.md for the layout.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
