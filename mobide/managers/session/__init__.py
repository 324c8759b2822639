from mobide.managers.session.session import SessionManager

__all__ = ["SessionManager"]
