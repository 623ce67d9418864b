# Import all models here so Alembic and create_all can see them
from app.db.session import Base

from app.modules.user_management.models.user import User
from app.modules.friendships.models.friendship import Friendship, FriendshipRequest
from app.modules.groups.models.group import Group, GroupMembership, GroupInvitation
from app.modules.hangouts.models.hangout import HangoutRequest, HangoutResponse
