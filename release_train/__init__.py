"""release-train: publish uv workspace packages in dependency order."""
