from .network import Omc, Station, Dispenser, Pump, pump_attendants
from .catalog import ProductCatalog, StationProductPrice
from .auth import Role, User, SessionToken
from .transactions import TokenStatus, Transaction

__all__ = [
    'Omc', 'Station', 'Dispenser', 'Pump', 'pump_attendants',
    'ProductCatalog', 'StationProductPrice',
    'Role', 'User', 'SessionToken',
    'TokenStatus', 'Transaction',
]
