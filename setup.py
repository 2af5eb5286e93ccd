from setuptools import setup, find_packages

setup(
    name="exmcmc",
    version="0.1.0",
    author="Sanjan Muchandimath",
    description="Extensible Metropolis-Hastings within Gibbs sampler with adaptive random walks",
    packages=find_packages(include=["exmcmc", "exmcmc.*"]),
    python_requires=">=3.8",
    install_requires=[
        "numpy",
        "scipy",
    ],
    extras_require={
        "test": ["pytest"],
    },
)
