"""Run the DocVault service with uvicorn."""
import uvicorn

from docvault.config import SERVICE_PORT


def main() -> None:
    uvicorn.run("docvault.main:app", host="0.0.0.0", port=SERVICE_PORT)


if __name__ == "__main__":
    main()
