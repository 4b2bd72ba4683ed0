from homeaudit.domain.models import User

__all__ = ["User"]
