class ProductAPIError(Exception):
    """Erreur métier rendue au client sous la forme {"error": message}"""

    def __init__(self, status_code: int, message: str, error_type: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.error_type = error_type


def not_found() -> ProductAPIError:
    return ProductAPIError(404, "Product not found", "not_found")


def unauthorized() -> ProductAPIError:
    return ProductAPIError(401, "Unauthorized", "unauthorized")


def missing_fields() -> ProductAPIError:
    return ProductAPIError(400, "Missing required fields", "missing_fields")
