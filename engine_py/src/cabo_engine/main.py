"""FastAPI main application for the Cabo game backend"""

import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .ws.server import connections, router

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(title="Cabo Card Game API", version="1.0.0")

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)

@app.get("/")
async def root():
    return {"message": "Cabo Card Game API", "version": "1.0.0"}

@app.get("/health")
async def health_check():
    return {"status": "healthy", "connections": len(connections)}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
