"""
Static Analysis Package.

Reflection-based inspection of Python types to find state that could be
mutated without synchronization when an instance is shared.

Modules:
    - ``analyzer``: The recursive, memoized thread safety check.
    - ``classifier``: Shape-based intrinsic immutability.
    - ``metadata``: Field, property and event discovery over the MRO.
    - ``lifecycle``: Source scan for attributes assigned through ``self``.
"""
