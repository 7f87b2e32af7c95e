"""Engine library modules.

Structure:
    - common/: Money coercion and display formatting
    - config/: JSON configuration files and loaders
    - budgets/: Allocation, gap, variance and balance logic
    - analytics/: pandas reports built from engine results
"""

__all__ = ['common', 'config', 'budgets', 'analytics']
