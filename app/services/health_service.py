from app import config


class HealthService:
    """
    Service layer for health-related logic.
    """

    def get_health_status(self) -> dict[str, str]:
        """
        Reports the service as up along with the storage and enrichment wiring it runs with.
        Downstream price and address lookups are not checked.
        """
        return {
            "status": "ok",
            "repository": config.CAR_REPOSITORY_BACKEND,
            "enrichment": config.ENRICHMENT_TRANSPORT,
        }

def get_health_service() -> HealthService:
    return HealthService()
