# Services package init
"""
HeartSmiles Backend — Services Layer
======================================

What:  The decision logic of the admission pipeline, free of HTTP types.

Service Inventory:
    - origin_matcher:   CORS allow-list rules and evaluation
    - rate_limiter:     fixed-window counters and client identity resolution
    - path_normalizer:  proxy prefix reconciliation
    - route_table:      longest-prefix resource lookup over both mounts
    - collaborators:    the uniform resource handler contract
"""
