import os

import uvicorn

if __name__ == "__main__":
    port = int(os.environ.get("MINDMAP_PORT", "8000"))

    print("Starting Mind-Map Document Service...")
    print(f"Docs available at: http://localhost:{port}/docs")

    uvicorn.run(
        "mindmap.api.server:app",
        host="0.0.0.0",
        port=port,
        reload=True
    )
