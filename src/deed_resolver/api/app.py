from fastapi import FastAPI
from fastapi.responses import PlainTextResponse

from deed_resolver.api.routes.deed import router as deed_router
from deed_resolver.api.routes.scrape import router as scrape_router
from deed_resolver.api.schemas import CountiesResponse, JurisdictionModel
from deed_resolver.jurisdiction_router import describe_jurisdictions


app = FastAPI(title="deed_resolver")

app.include_router(scrape_router, prefix="/api")
app.include_router(deed_router, prefix="/api")


def counties():
    return CountiesResponse(
        counties=[JurisdictionModel(**entry) for entry in describe_jurisdictions()]
    )


@app.get("/health", response_class=PlainTextResponse)
def health_route():
    return "OK"


@app.get("/api/counties", response_model=CountiesResponse)
def counties_route():
    return counties()
