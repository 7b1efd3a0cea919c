# autoblog/api/v1/routers/products.py

from fastapi import APIRouter, Depends, Query, HTTPException
import time

from autoblog.api.deps import catalog_client
from autoblog.core.errors import CatalogSearchError, NoEligibleCandidates, TransportFailure
from autoblog.domain.models.product import ProductSearchResult
from autoblog.domain.services.catalog_svc import CatalogClient

import logging
logger = logging.getLogger(__name__)

router = APIRouter(tags=["products"])


@router.get("/products/search", response_model=ProductSearchResult, summary="Preview the products an article would use")
async def search_products(
    keyword: str = Query(..., min_length=1, description="Primary keyword"),
    count: int = Query(5, ge=1, le=20, description="Number of products wanted"),
    client: CatalogClient = Depends(catalog_client),
):
    t0 = time.perf_counter()
    try:
        items = await client.search_products(keyword, count)
    except NoEligibleCandidates as e:
        raise HTTPException(status_code=404, detail={"message": str(e), "rejections": e.rejections})
    except CatalogSearchError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except TransportFailure as e:
        raise HTTPException(status_code=502, detail=str(e))
    dt = time.perf_counter() - t0

    logger.info("Response: search_products keyword=%r returned %s items in %.4fs", keyword, len(items), dt)
    return ProductSearchResult(keyword=keyword, items=items, count=len(items))
