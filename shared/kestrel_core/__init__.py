# KESTREL Core - Quantitative Engines
"""
Statistical and risk engines for the KESTREL trading platform.

Modules:
    constants: Annualization, critical values and Kelly tables
    exceptions: Centralized exception hierarchy
    models: Bar, Signal, Trade and sizing value types
    statistics: OLS, ADF, half-life, Johansen, correlation, z-score
    hurst_regime: R/S Hurst exponent and regime classification
    kalman_filter: Time-varying hedge ratio
    cointegration: Spread construction and the stationarity battery
    pairs_strategy: Pairs-trading signal state machine
    pair_scanner: Pair universe ranking
    indicators: RSI, MACD, Bollinger bands, volume spikes
    strategies: Strategy capabilities and single-asset strategies
    correlation_tracker: Correlation matrix and diversification factor
    cvar_engine: VaR / CVaR estimation and caps
    kelly_criterion: Kelly position sizing family
    position_sizer: Sizing orchestration
    execution_model: Slippage and commission model
    portfolio: Backtest cash and position ledger
    performance: Sharpe, Sortino, Calmar, drawdown, permutation test
    backtest_engine: Single-asset and pairs backtesters
    config_manager: YAML/JSON configuration loading
"""

from .constants import (
    VERSION,
    SYSTEM_NAME,
    TRADING_DAYS_PER_YEAR,
)

from .exceptions import (
    KestrelError,
    ConfigurationError,
    InvalidConfigError,
    MissingConfigError,
    DataError,
    DataValidationError,
    StrategyError,
    CapabilityError,
)

from .models import (
    Action,
    Bar,
    Signal,
    Trade,
    PositionSizingResult,
    extract_closes,
)

from .statistics import (
    OLSResult,
    ADFResult,
    JohansenResult,
    ols_regression,
    adf_test,
    half_life,
    johansen_test,
    pearson_correlation,
    z_score,
)

from .hurst_regime import (
    HurstRegime,
    HurstConfig,
    HurstAssessment,
    HurstClassifier,
    hurst_exponent,
)

from .kalman_filter import (
    KalmanConfig,
    KalmanState,
    KalmanFilterResult,
    KalmanHedgeRatio,
)

from .cointegration import (
    SpreadSeries,
    CointegrationResult,
    compute_spread,
    evaluate_cointegration,
)

from .strategies import (
    Strategy,
    PairStrategy,
    TechnicalConfig,
    TechnicalStrategy,
    MomentumConfig,
    MomentumStrategy,
    MeanReversionConfig,
    MeanReversionStrategy,
    EnsembleConfig,
    EnsembleStrategy,
)

from .pairs_strategy import (
    PairsStrategyConfig,
    PositionLegs,
    PairsTradingStrategy,
)

from .pair_scanner import (
    ScannerConfig,
    PairScanResult,
    PairScanner,
)

from .correlation_tracker import (
    CorrelationConfig,
    CorrelationTracker,
)

from .cvar_engine import (
    CVaRConfig,
    TailRiskResult,
    CVaREngine,
)

from .kelly_criterion import (
    KellyConfig,
    KellyCriterion,
)

from .position_sizer import (
    PositionSizerConfig,
    PositionSizer,
)

from .execution_model import (
    SlippageModel,
    ExecutionConfig,
    ExecutionCostSummary,
    ExecutionModel,
)

from .portfolio import (
    Position,
    Portfolio,
)

from .performance import (
    PermutationTestResult,
    max_drawdown,
    sharpe_ratio,
    sortino_ratio,
    calmar_ratio,
    profit_factor,
    monte_carlo_permutation,
)

from .backtest_engine import (
    BacktestConfig,
    PairsBacktestConfig,
    BacktestReport,
    PairsBacktestReport,
    Backtester,
    PairsBacktester,
)

from .config_manager import (
    KestrelConfig,
    ConfigManager,
)

__version__ = "1.0.0"

__all__ = [
    # Version
    "__version__",

    # Constants
    "VERSION",
    "SYSTEM_NAME",
    "TRADING_DAYS_PER_YEAR",

    # Exceptions
    "KestrelError",
    "ConfigurationError",
    "InvalidConfigError",
    "MissingConfigError",
    "DataError",
    "DataValidationError",
    "StrategyError",
    "CapabilityError",

    # Models
    "Action",
    "Bar",
    "Signal",
    "Trade",
    "PositionSizingResult",
    "extract_closes",

    # Statistics
    "OLSResult",
    "ADFResult",
    "JohansenResult",
    "ols_regression",
    "adf_test",
    "half_life",
    "johansen_test",
    "pearson_correlation",
    "z_score",

    # Hurst
    "HurstRegime",
    "HurstConfig",
    "HurstAssessment",
    "HurstClassifier",
    "hurst_exponent",

    # Kalman Filter
    "KalmanConfig",
    "KalmanState",
    "KalmanFilterResult",
    "KalmanHedgeRatio",

    # Cointegration
    "SpreadSeries",
    "CointegrationResult",
    "compute_spread",
    "evaluate_cointegration",

    # Strategies
    "Strategy",
    "PairStrategy",
    "TechnicalConfig",
    "TechnicalStrategy",
    "MomentumConfig",
    "MomentumStrategy",
    "MeanReversionConfig",
    "MeanReversionStrategy",
    "EnsembleConfig",
    "EnsembleStrategy",

    # Pairs
    "PairsStrategyConfig",
    "PositionLegs",
    "PairsTradingStrategy",
    "ScannerConfig",
    "PairScanResult",
    "PairScanner",

    # Correlation Tracker
    "CorrelationConfig",
    "CorrelationTracker",

    # CVaR Engine
    "CVaRConfig",
    "TailRiskResult",
    "CVaREngine",

    # Kelly Criterion
    "KellyConfig",
    "KellyCriterion",

    # Position Sizer
    "PositionSizerConfig",
    "PositionSizer",

    # Execution
    "SlippageModel",
    "ExecutionConfig",
    "ExecutionCostSummary",
    "ExecutionModel",

    # Backtesting
    "Position",
    "Portfolio",
    "PermutationTestResult",
    "max_drawdown",
    "sharpe_ratio",
    "sortino_ratio",
    "calmar_ratio",
    "profit_factor",
    "monte_carlo_permutation",
    "BacktestConfig",
    "PairsBacktestConfig",
    "BacktestReport",
    "PairsBacktestReport",
    "Backtester",
    "PairsBacktester",

    # Configuration
    "KestrelConfig",
    "ConfigManager",
]
