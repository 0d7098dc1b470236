from .auth import StaffRole, StaffUser, SessionToken
from .security import SecurityEvent
from .clients import Client
from .vehicles import Car, CarOwnership
from .interventions import Intervention, InterventionStatus, NumberSequence

__all__ = [
    'StaffRole', 'StaffUser', 'SessionToken', 'SecurityEvent',
    'Client',
    'Car', 'CarOwnership',
    'Intervention', 'InterventionStatus', 'NumberSequence',
]
