#config.py
from numbers import Real
from weight_set import INIT_VALUE

# default config for a CNN. Override any key by passing a dict to CNN(cfg).
DEFAULT_CFG = {
    'epochs': 10,
    'learning_rate': 0.001,
    'batch_size': 32,           # only decides which images are augmented together, gradients are never averaged
    'init_value': INIT_VALUE,   # constant every weight starts from
    'verbose': True,            # tqdm progress bars and the profiler report
}

def validate_cfg(cfg: dict) -> None:
    """
    Validates a config dict.

    Raises:
        TypeError: If a value has the wrong type.
        ValueError: If a key is unknown or a value is out of range.
    """
    unknown = set(cfg) - set(DEFAULT_CFG)
    if unknown:
        raise ValueError(f"Unknown config keys: {sorted(unknown)}")

    if not isinstance(cfg['epochs'], int) or isinstance(cfg['epochs'], bool):
        raise TypeError("'epochs' must be an integer.")
    if cfg['epochs'] < 0:
        raise ValueError("'epochs' must be a non-negative integer.")

    if not isinstance(cfg['batch_size'], int) or isinstance(cfg['batch_size'], bool):
        raise TypeError("'batch_size' must be an integer.")
    if cfg['batch_size'] < 1:
        raise ValueError("'batch_size' must be a positive integer.")

    if not isinstance(cfg['learning_rate'], Real):
        raise TypeError("'learning_rate' must be a number.")

    if not isinstance(cfg['init_value'], Real):
        raise TypeError("'init_value' must be a number.")

    if not isinstance(cfg['verbose'], bool):
        raise TypeError("'verbose' must be a bool.")
