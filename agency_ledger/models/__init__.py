from .user import User
from .organization import Organization, OrganizationMember
from .commission import Commission
