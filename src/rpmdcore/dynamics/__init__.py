from .free_ring import FreeRingPolymerPropagator
from .verlet import VelocityVerlet
