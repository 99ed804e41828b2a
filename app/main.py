from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.v1.academic_years.router import router as academic_years_router
from app.api.v1.classes.router import router as classes_router
from app.api.v1.sections.router import router as sections_router
from app.api.v1.year_transitions.router import router as year_transitions_router
from app.core.logging_config import configure_logging


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title="School Year Transition Backend")

    # CORS: allow frontend to call this API
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers
    app.include_router(academic_years_router)
    app.include_router(sections_router)
    app.include_router(classes_router)
    app.include_router(year_transitions_router)

    return app


app = create_app()
