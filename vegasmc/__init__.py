"""Vegas Monte Carlo integration, a partition viewer and a distribution packer."""

__version__ = "4.2.2"
__all__ = ["grid", "integrate", "partview", "mkdist"]