from rbmvmc.sampling.backend import ChainSampler, SampleBatch, Sweeper
from rbmvmc.sampling.sampler import MetropolisSampler, random_sigma
from rbmvmc.sampling.schedules import McmcSchedule
from rbmvmc.sampling.sweepers import BondExchangeSweeper, LocalSweeper, SwapSweeper
from rbmvmc.sampling.tempering import ParallelTemperingSampler, linear_betas

__all__ = [
    "BondExchangeSweeper",
    "ChainSampler",
    "LocalSweeper",
    "McmcSchedule",
    "MetropolisSampler",
    "ParallelTemperingSampler",
    "SampleBatch",
    "SwapSweeper",
    "Sweeper",
    "linear_betas",
    "random_sigma",
]
