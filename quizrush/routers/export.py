from fastapi import APIRouter, HTTPException
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import Response

from quizrush.schemas import ExportPdfRequest
from quizrush.services.pdf_export import export_filename, render_results_pdf

router = APIRouter(tags=["export"])


@router.post("/export-pdf")
async def export_pdf(body: ExportPdfRequest):
    """Render quiz results as a downloadable PDF"""
    if not body.rows:
        raise HTTPException(status_code=400, detail="No rows to export.")

    rows = [row.model_dump() for row in body.rows]
    pdf = await run_in_threadpool(render_results_pdf, rows, body.title)
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{export_filename(body.title)}"'},
    )
