from infrastructure.clients.unit_data_client import UnitDataClient

__all__ = ["UnitDataClient"]
