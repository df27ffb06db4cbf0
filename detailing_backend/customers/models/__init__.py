from .customer import Customer
from .vehicle import Vehicle

__all__ = ["Customer", "Vehicle"]
