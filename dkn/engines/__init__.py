"""
Engines - business operations built on the kernel.
"""
