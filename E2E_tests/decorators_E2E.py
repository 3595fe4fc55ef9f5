"""This file contains decorators used to hand a fresh in-memory Supabase fake to tests."""


def test_with_mock_service(mock_service_class, seed=None):
    """
    Decorator to inject a mock service into a test function.

    Args:
        mock_service_class: The class of the mock service to inject.
        seed: Optional callable that fills the mock with rows before the test runs. What it returns is passed to
            the test as second argument.
    """

    def decorator(test_func):
        def wrapper(*args, **kwargs):
            mock_service = mock_service_class()
            if seed is None:
                return test_func(mock_service, *args, **kwargs)
            return test_func(mock_service, seed(mock_service), *args, **kwargs)
        return wrapper
    return decorator


if __name__ == "__main__":
    from mock_service import FakeSupabaseClient, seed_catalog

    @test_with_mock_service(FakeSupabaseClient, seed=seed_catalog)
    def example_test(mock_service, seeded):
        print("Products in the mock service:", [row["name"] for row in mock_service.tables["products"]])
        print("Seeded token:", seeded["token"]["token"])

    example_test()
