import uvicorn

from homeostat.config import get_config

if __name__ == "__main__":
    config = get_config()

    print("Starting Homeostat API Server...")
    print(f"State document: {config.state_path}")
    print(f"Docs available at: http://localhost:{config.port}/docs")

    uvicorn.run(
        "homeostat.api.server:app",
        host=config.host,
        port=config.port,
        reload=config.env == "dev"
    )
