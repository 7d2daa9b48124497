import logging

from fastapi import FastAPI

from photoroll.routers.pipeline import router as pipeline_router
from photoroll.services.config import Settings


def create_app() -> FastAPI:
	settings = Settings()
	logging.basicConfig(level=settings.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

	app = FastAPI(title="photoroll - web image pipeline", version="0.1.0")

	# Routers
	app.include_router(pipeline_router)

	@app.get("/health", summary="Liveness probe")
	def health():
		return {"status": "ok"}

	return app


app = create_app()


if __name__ == "__main__":
	# Local dev server: uvicorn photoroll.main:app --reload
	import uvicorn

	uvicorn.run("photoroll.main:app", host="0.0.0.0", port=8000, reload=True)
