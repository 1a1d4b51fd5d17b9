"""Database adapters implementing :class:`~sqlchain.protocols.DatabaseProtocol`."""
