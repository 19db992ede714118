from setuptools import setup, find_packages

setup(
    name='Chunkcast',
    version='0.1',
    packages=find_packages(exclude=['tests', 'tests.*']),
    include_package_data=True,
    package_data={
        'chunkcast': ['static/*', 'static/audio/*']
    },
    python_requires='>=3.10',
    install_requires=[
        'Flask>=2.0',
        'websockets>=15.0.1'
    ],
    entry_points={
        'console_scripts': [
            'chunkcast=chunkcast.server:main'
        ],
    },
)
