from .intake import make_intake_node
from .bundle import make_bundle_node
from .invoke import make_invoke_node
from .normalize import normalize
from .score import score
from .finalize import finalize
