from setuptools import setup, find_packages

version = '0.1.0'
req = [
    'msgpack',
    'psutil>=2.0.0',
]

setup(name='ratefuse',
      version=version,
      description="Item based collaborative filtering inference: "
                  + "rating prediction from item correlations and utility score fusion.",
      classifiers=[
          "Programming Language :: Python",
          "Programming Language :: Python :: 3",
          'Intended Audience :: Developers',
          'License :: OSI Approved :: BSD License',
          'Operating System :: POSIX',
      ],
      keywords='recommendation collaborative-filtering mapreduce',
      license='BSD License',
      packages=find_packages(exclude=('tests', 'tests.*')),
      include_package_data=True,
      zip_safe=False,
      python_requires='>=3.6',
      install_requires=req,
      extras_require={
          'test': ['pytest'],
      },
      scripts=[
          'tools/ratefuse',
      ]
      )
