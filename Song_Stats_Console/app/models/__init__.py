from .account import Account, Role
from .song import Song
