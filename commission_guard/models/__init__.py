from .user import User
from .client import Client
from .property import Property
from .contract import Contract
from .showing import Showing
from .property_visit import PropertyVisit
from .commission_protection import CommissionProtection
from .potential_breach import PotentialBreach
from .alert import Alert

__all__ = ["User", "Client", "Property", "Contract", "Showing", "PropertyVisit", "CommissionProtection", "PotentialBreach", "Alert"]
