import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from thankcast.config import CORS_ORIGINS
from thankcast.api.v1.endpoints.composites import router as composites_router

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

app = FastAPI(title="ThankCast Compositing API")

# Setup CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(composites_router, prefix="/api/v1")

@app.get("/")
async def root():
    return {"status": "ok", "message": "ThankCast compositing backend is running"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
