"""
Bluetooth link manager test suite.
"""
