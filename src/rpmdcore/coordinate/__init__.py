from ._base import DividingSurface
from .reaction import ReactionCoordinate, FORMULA_MAP
from .surfaces import ReactantsSurface, TransitionStateSurface

SURFACE_MAP = {
    "reactants": ReactantsSurface,
    "transition_state": TransitionStateSurface,
}
