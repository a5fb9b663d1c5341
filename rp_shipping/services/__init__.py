"""Business logic services package.

Contains the catalog read-through cache, the rate calculator, the merchant
selection transforms, and the carrier API clients and cache stores they
depend on.
"""
