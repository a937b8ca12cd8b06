"""Service to load and validate portfolio.yaml data."""

import yaml
from pathlib import Path
from typing import Optional
from portfolio_site.models.portfolio_models import PortfolioContent


class PortfolioLoader:
    """Load and validate portfolio content from YAML."""

    def __init__(self, portfolio_path: Optional[Path] = None):
        """
        Initialize the portfolio loader.

        Args:
            portfolio_path: YAML file to read. Defaults to portfolio_site/data/portfolio.yaml
        """
        if portfolio_path is None:
            portfolio_path = Path(__file__).parent.parent / "data" / "portfolio.yaml"
        self.portfolio_path = portfolio_path
        self._portfolio: Optional[PortfolioContent] = None

    def load_portfolio(self) -> PortfolioContent:
        """
        Load portfolio content from the YAML file.

        Returns:
            PortfolioContent: Validated portfolio content

        Raises:
            FileNotFoundError: If the YAML file doesn't exist
            ValueError: If the YAML data is empty or invalid
        """
        if self._portfolio is not None:
            return self._portfolio

        if not self.portfolio_path.exists():
            raise FileNotFoundError(f"Portfolio file not found: {self.portfolio_path}")

        try:
            with open(self.portfolio_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML format in {self.portfolio_path}: {e}") from e

        if data is None:
            raise ValueError("Portfolio YAML file is empty")

        try:
            self._portfolio = PortfolioContent(**data)
        except Exception as e:
            raise ValueError(f"Invalid portfolio data: {str(e)}") from e

        return self._portfolio


# Singleton instance
_portfolio_loader: Optional[PortfolioLoader] = None


def get_portfolio_loader(portfolio_path: Optional[Path] = None) -> PortfolioLoader:
    """
    Get or create the portfolio loader singleton.

    Args:
        portfolio_path: Optional YAML file location

    Returns:
        PortfolioLoader: The loader instance
    """
    global _portfolio_loader
    if _portfolio_loader is None:
        _portfolio_loader = PortfolioLoader(portfolio_path)
    return _portfolio_loader
