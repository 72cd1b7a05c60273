from setuptools import setup, find_packages

setup(
    name="turing-screen",
    version="1.0.0",
    description="To drive Turing smart screen serial display panels",
    author="Garrett Johnson",
    packages=find_packages(include=["turing_screen", "turing_screen.*"]),
    python_requires=">=3.11",
    install_requires=[
        "aioserial>=1.3.0",
        "numpy>=1.23.0",
        "Pillow>=10.1.0",
        "pyserial>=3.5",
    ],
    extras_require={
        "test": ["pytest>=7.0", "pytest-asyncio>=0.21"],
    },
    entry_points={
        "console_scripts": ["turing-screen=turing_screen.main:main"],
    },
    tests_require=["pytest", "pytest-asyncio"],
)
