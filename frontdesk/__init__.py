"""Front desk application for the clinic backend.

This package contains the document store, the coupon allocator, the
department waiting lists and the API views built on them.
"""
