"""Identity store building blocks (persistence/store/matcher/enrollment).

`FaceAuth` in `service.py` wires them together around one shared store.
"""
