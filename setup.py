from setuptools import setup, find_packages
setup(
    name='s3demo',
    version='0.1',
    author='Bryan Lawrence',
    author_email='bryan.lawrence@ncas.ac.uk',
    description='Command line demonstration of S3 bucket lifecycle operations',
    packages=find_packages(exclude=['tests', 'tests.*']),
    entry_points={'console_scripts': ['s3demo=s3demo.s3tool:main']},
    python_requires='>=3.10',
    install_requires = [
        'cmd2>2,<3',
        'minio>=7.2',
        'urllib3',
        'pyreadline3;platform_system=="Windows"'
        ],
    extras_require = {
        'test': ['pytest', 'pytest-mock', 'docker'],
        }
    )
