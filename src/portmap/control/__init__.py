"""
Control plane: HTTP endpoints that mutate and read the binding registry.
"""
