"""Portfolio cost basis, validation, and assembly."""
