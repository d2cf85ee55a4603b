#!/usr/bin/env python3

import setuptools

setuptools.setup (
  name                          = "calcpad",
  version                       = "1.0.0",
  license                       = 'BSD',
  keywords                      = "Math SymPy LaTeX spreadsheet document",
  description                   = "Live {expr} placeholders in HTML documents: arithmetic, LaTeX and table ranges evaluated in place",
  long_description              = "CalcPad evaluates {expr} placeholders written directly in the prose and table cells of a rich-text HTML document. "
    "Placeholders can hold plain arithmetic evaluated by SymPy, LaTeX math wrapped in $$ rendered to inline SVG by matplotlib, "
    "or spreadsheet-style table ranges like sum (table1[A1:B3]) which aggregate the numeric cells of the tables in the document. "
    "A debounced refresh loop re-evaluates a live document and rewrites it only when the output changes, preserving the selection.",
  long_description_content_type = "text/plain",
  py_modules                    = ['calcpad', 'sdoc', 'sexpr', 'slatex', 'srefresh'],
  scripts                       = ['bin/calcpad'],
  classifiers                   = [
    'Intended Audience :: Education',
    'Intended Audience :: Science/Research',
    'License :: OSI Approved :: BSD License',
    'Operating System :: OS Independent',
    'Programming Language :: Python',
    'Programming Language :: Python :: 3',
    'Programming Language :: Python :: 3 :: Only',
    'Topic :: Scientific/Engineering :: Mathematics',
    'Topic :: Text Processing :: Markup :: HTML',
  ],
  install_requires              = ['sympy>=1.9', 'matplotlib>=3.3'],
  python_requires               = '>=3.8',
)
