"""TenantDrive: per-tenant folders on a flat object store."""
