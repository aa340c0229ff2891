"""REST path templates for each resource the fetcher can crawl."""

DRAWING_AREAS = "/rest/v1.1/projects/{project_id}/drawing_areas"
DRAWING_LOG = "/rest/v1.1/projects/{project_id}/drawing_areas/{area_id}/drawing_log"
DRAWING_DISCIPLINES = (
    "/rest/v1.1/projects/{project_id}/drawing_areas/{area_id}/drawing_disciplines"
)
RFIS = "/rest/v1.0/projects/{project_id}/rfis"
COMMITMENT_ENDPOINTS = (
    "/rest/v1.0/projects/{project_id}/commitments",
    "/rest/v1.0/projects/{project_id}/purchase_order_contracts",
    "/rest/v1.0/projects/{project_id}/work_order_contracts",
)
SPECIFICATION_SECTIONS = (
    "/rest/v2.1/companies/{company_id}/projects/{project_id}/specification_sections"
)
SPECIFICATION_DIVISIONS = (
    "/rest/v2.1/companies/{company_id}/projects/{project_id}"
    "/specification_section_divisions"
)
