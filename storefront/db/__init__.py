from .session import create_engine_for, make_session_factory

__all__ = ["create_engine_for", "make_session_factory"]
