from setuptools import setup, find_packages
setup(
    name="deed_resolver",
    version="0.1.0",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    include_package_data=True,
    python_requires=">=3.9",
    install_requires=[
        "beautifulsoup4",
        "fastapi",
        "playwright",
        "pydantic>=2",
        "requests",
        "uvicorn",
    ],
    extras_require={
        "test": ["pytest", "httpx"],
    },
    entry_points={
        'console_scripts': [
            'deed_resolver=deed_resolver.__main__:_safe_main'
        ]
    }
)
