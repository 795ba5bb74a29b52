from app.domains.identity.entities import User, GlobalRole, Principal

__all__ = ["User", "GlobalRole", "Principal"]
