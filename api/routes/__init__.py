"""HTTP route modules, one APIRouter per dashboard area."""
