from .build import build_graph
