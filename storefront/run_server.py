# this file is a wrapper to run the server with uvicorn
import uvicorn

from storefront.core.config.general_config import settings
from storefront.main import app as fastapi_app


def main():
    uvicorn.run(fastapi_app, host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    # Run the FastAPI app directly if this script is executed
    main()
