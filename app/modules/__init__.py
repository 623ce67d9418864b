"""
Modules package initialization.
This package contains all the functional modules of the application.
"""

from app.modules import user_management
from app.modules import friendships
from app.modules import groups
from app.modules import hangouts
from app.modules import recommendations
from app.modules import notifications
