"""Russian Post shipping rates package.

Integrates the Russian Post tariff API into an e-commerce checkout: the
merchant picks which carrier services and add-on services are offered, and
shipping quotes are computed for a shipment at checkout time.

The package follows a modular architecture with separate concerns for:
- Catalog retrieval and read-through caching
- Tariff calculation per selected service
- Merchant service selection (pure data transforms)
- Carrier HTTP adapters and cache backends
"""
