"""
membership.py
-------------

Membership functions used by the fuzzy inference engine.

Every function maps a crisp value x to a membership degree in [0, 1].
The family is closed - four variants, each an immutable record of its
parameters:

    Triangular(a, b, c)       - 0 outside [a, c], peak 1.0 at b
    Trapezoidal(a, b, c, d)   - 0 outside [a, d], plateau 1.0 on [b, c]
    Gaussian(mean, sigma)     - exp(-(x - mean)^2 / (2 sigma^2))
    Sigmoidal(a, c)           - 1 / (1 + exp(-a (x - c)))

Evaluation is a single function, evaluate(mf, x), that dispatches on the
variant. It accepts a float (returns a float) or a numpy array (returns an
array of the same shape), so the same definition serves fuzzification of a
single input and the discretised universe used by defuzzification.

Invalid parameters are rejected at construction time with ValueError.
"""

from __future__ import annotations

import sys
from dataclasses import asdict, dataclass

import numpy as np
from scipy.special import expit

EPS = sys.float_info.epsilon


# -------------------------------------------------------------------------
# Variants
# -------------------------------------------------------------------------

@dataclass(frozen=True)
class Triangular:
    """
    Triangular membership function.

    a - left foot
    b - peak (membership 1.0)
    c - right foot
    """
    a: float
    b: float
    c: float

    def __post_init__(self) -> None:
        if not (self.a <= self.b <= self.c):
            raise ValueError(
                f"Triangular membership function requires a <= b <= c, "
                f"got ({self.a}, {self.b}, {self.c})"
            )

    def evaluate(self, x):
        return evaluate(self, x)


@dataclass(frozen=True)
class Trapezoidal:
    """
    Trapezoidal membership function.

    a, d - feet (membership 0.0)
    b, c - shoulders, membership 1.0 on [b, c]
    """
    a: float
    b: float
    c: float
    d: float

    def __post_init__(self) -> None:
        if not (self.a <= self.b <= self.c <= self.d):
            raise ValueError(
                f"Trapezoidal membership function requires a <= b <= c <= d, "
                f"got ({self.a}, {self.b}, {self.c}, {self.d})"
            )

    def evaluate(self, x):
        return evaluate(self, x)


@dataclass(frozen=True)
class Gaussian:
    """Gaussian membership function centred at mean, width sigma."""
    mean: float
    sigma: float

    def __post_init__(self) -> None:
        if not self.sigma > 0.0:
            raise ValueError(
                f"Gaussian membership function requires sigma > 0, got {self.sigma}"
            )

    def evaluate(self, x):
        return evaluate(self, x)


@dataclass(frozen=True)
class Sigmoidal:
    """Sigmoidal membership function with slope a and crossover point c."""
    a: float
    c: float

    def __post_init__(self) -> None:
        if abs(self.a) <= EPS:
            raise ValueError(
                f"Sigmoidal membership function requires a != 0, got {self.a}"
            )

    def evaluate(self, x):
        return evaluate(self, x)


MembershipFunction = Triangular | Trapezoidal | Gaussian | Sigmoidal


# -------------------------------------------------------------------------
# Constructors
# -------------------------------------------------------------------------

def triangular(a: float, b: float, c: float) -> Triangular:
    return Triangular(float(a), float(b), float(c))


def trapezoidal(a: float, b: float, c: float, d: float) -> Trapezoidal:
    return Trapezoidal(float(a), float(b), float(c), float(d))


def gaussian(mean: float, sigma: float) -> Gaussian:
    return Gaussian(float(mean), float(sigma))


def sigmoidal(a: float, c: float) -> Sigmoidal:
    return Sigmoidal(float(a), float(c))


# -------------------------------------------------------------------------
# Evaluation
# -------------------------------------------------------------------------

def _ramp_up(x: np.ndarray, lo: float, hi: float) -> np.ndarray:
    """Linear rise from lo to hi; a degenerate flank evaluates to 0."""
    den = hi - lo
    if abs(den) < EPS:
        return np.zeros_like(x)
    return (x - lo) / den


def _ramp_down(x: np.ndarray, lo: float, hi: float) -> np.ndarray:
    """Linear fall from lo to hi; a degenerate flank evaluates to 0."""
    den = hi - lo
    if abs(den) < EPS:
        return np.zeros_like(x)
    return (hi - x) / den


def _triangular(mf: Triangular, x: np.ndarray) -> np.ndarray:
    outside = (x < mf.a) | (x > mf.c)
    peak = np.abs(x - mf.b) < EPS
    rising = x < mf.b
    return np.select(
        [outside, peak, rising],
        [0.0, 1.0, _ramp_up(x, mf.a, mf.b)],
        default=_ramp_down(x, mf.b, mf.c),
    )


def _trapezoidal(mf: Trapezoidal, x: np.ndarray) -> np.ndarray:
    outside = (x < mf.a) | (x > mf.d)
    plateau = (x >= mf.b) & (x <= mf.c)
    rising = x < mf.b
    return np.select(
        [outside, plateau, rising],
        [0.0, 1.0, _ramp_up(x, mf.a, mf.b)],
        default=_ramp_down(x, mf.c, mf.d),
    )


def evaluate(mf: MembershipFunction, x):
    """
    Membership degree of x in mf.

    :param mf: one of the membership function variants
    :param x: crisp value or numpy array of values
    :return: float for scalar input, ndarray otherwise; always within [0, 1]
    """
    xs = np.asarray(x, dtype=float)
    flat = np.atleast_1d(xs)

    match mf:
        case Triangular():
            out = _triangular(mf, flat)
        case Trapezoidal():
            out = _trapezoidal(mf, flat)
        case Gaussian(mean=mean, sigma=sigma):
            out = np.exp(-((flat - mean) ** 2) / (2.0 * sigma ** 2))
        case Sigmoidal(a=a, c=c):
            out = expit(a * (flat - c))
        case _:
            raise TypeError(f"Unknown membership function: {mf!r}")

    if xs.ndim == 0:
        return float(out[0])
    return out


# -------------------------------------------------------------------------
# Serialisation
# -------------------------------------------------------------------------

_TYPE_NAMES = {
    Triangular: "triangular",
    Trapezoidal: "trapezoidal",
    Gaussian: "gaussian",
    Sigmoidal: "sigmoidal",
}
_TYPES_BY_NAME = {name: cls for cls, name in _TYPE_NAMES.items()}


def to_dict(mf: MembershipFunction) -> dict:
    """{'type': 'triangular', 'a': ..., 'b': ..., 'c': ...}"""
    return {"type": _TYPE_NAMES[type(mf)], **asdict(mf)}


def from_dict(data: dict) -> MembershipFunction:
    """Inverse of to_dict; parameters are validated again."""
    params = dict(data)
    kind = params.pop("type", None)
    cls = _TYPES_BY_NAME.get(kind)
    if cls is None:
        raise ValueError(
            f"Unknown membership function type: {kind!r}. "
            f"Valid types: {', '.join(sorted(_TYPES_BY_NAME))}"
        )
    try:
        return cls(**{k: float(v) for k, v in params.items()})
    except TypeError as exc:
        raise ValueError(f"Invalid parameters for {kind}: {params}") from exc
