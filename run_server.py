import os

import uvicorn

if __name__ == "__main__":
    port = int(os.environ.get("MOMENT_ENGINE_PORT", "8000"))

    print("Starting Moment Intelligence API Server...")
    print(f"Docs available at: http://localhost:{port}/docs")

    uvicorn.run(
        "moment_engine.api.server:app",
        host="0.0.0.0",
        port=port,
        reload=True
    )
