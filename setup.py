from setuptools import setup, find_packages

setup(
    name="qclust",
    version="0.1.0",
    description="Entangled-cluster state-vector simulation of qubit registers",
    packages=find_packages(exclude=["tests", "tests.*", "examples"]),
    python_requires=">=3.9",
    install_requires=[
        "numpy>=1.21",
        "qiskit>=0.45",
        "networkx>=2.6",
    ],
    extras_require={
        "dev": ["pytest>=7.0"],
    },
)
