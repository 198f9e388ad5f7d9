"""Layout engines for the planner map.

Two strategies share one contract, ``layout(index, sizes, cache, locked, viewport)``:
the deterministic radial placement used by default, and a damped force
relaxation that starts from the radial result. Positions live in an explicit
``LayoutCache`` owned by the caller, never in module state.
"""
