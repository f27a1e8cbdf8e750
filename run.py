"""
Simple script to run the ADP Works Portal server.
"""
import os

import uvicorn

if __name__ == "__main__":
    host = os.getenv("HOST", "127.0.0.1")
    port = int(os.getenv("PORT", "8000"))

    print("Starting ADP Works Portal...")
    print(f"Access at: http://{host}:{port}")
    print("Press Ctrl+C to stop")
    print("-" * 40)

    uvicorn.run(
        "adp_portal.main:app",
        host=host,
        port=port,
        reload=True
    )
