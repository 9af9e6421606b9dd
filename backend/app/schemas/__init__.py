"""Pydantic schemas for the Real Estate Portfolio API."""

from app.schemas.base import *
from app.schemas.auth import *
from app.schemas.project import *
from app.schemas.category import *
from app.schemas.contact import *
from app.schemas.cost import *
from app.schemas.document import *
from app.schemas.event import *
from app.schemas.phase import *
from app.schemas.notification import *
from app.schemas.vendor import *
from app.schemas.comment import *
from app.schemas.partner import *
from app.schemas.search import *
from app.schemas.security import *
from app.schemas.dashboard import *
