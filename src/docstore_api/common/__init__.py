"""Cross-cutting helpers shared by Document Store features."""
