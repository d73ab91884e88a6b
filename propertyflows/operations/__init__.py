"""Operations layer for business workflows and orchestration."""
